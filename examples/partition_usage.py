"""
Example demonstrating how to partition a collection from Python code.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone

from rangesplit import MemoryCounter, PartitionEngine, PartitionerConfig, generate_partitions
from rangesplit.core.enums import FieldType

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def memory_example():
    """Partition timestamps that are already in memory"""
    print("\n=== In-memory Example ===")

    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    # Busy first week, quiet rest of the month
    timestamps = [start + timedelta(minutes=i) for i in range(7 * 24 * 60)]
    timestamps += [start + timedelta(days=7, hours=i) for i in range(24 * 24)]

    async with MemoryCounter(timestamps) as counter:
        partitions = await generate_partitions(
            counter, "created", start, start + timedelta(days=31), ceiling=2500
        )

    for partition in partitions:
        print(f"{partition.document_count:>6}  {partition.filter}")


async def engine_example():
    """Drive the engine directly with an explicit configuration"""
    print("\n=== Engine Example ===")

    config = PartitionerConfig(
        field_name="id",
        field_type=FieldType.INTEGER,
        lower_bound=0,
        upper_bound=999_999,
        ceiling=100_000,
        concurrent=False,
    )
    counter = MemoryCounter(range(0, 1_000_000, 3))

    async with counter:
        partitions = await PartitionEngine(counter, config).generate_partitions()

    print(f"{len(partitions)} partitions from {len(counter.calls)} count queries")
    for partition in partitions:
        print(partition.to_dict())


async def main():
    await memory_example()
    await engine_example()


if __name__ == "__main__":
    asyncio.run(main())
