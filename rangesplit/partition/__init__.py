from .partition_engine import PartitionEngine, generate_partitions, merge_partitions

__all__ = ['PartitionEngine', 'generate_partitions', 'merge_partitions']
