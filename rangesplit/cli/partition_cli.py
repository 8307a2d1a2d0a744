#!/usr/bin/env python3
"""
Rangesplit Partition CLI

Splits a collection into size-bounded range partitions and prints them as
JSON, ready to be handed to an exporter or batch job.
"""

import asyncio
import click
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from ..config.config_loader import ConfigLoader
from ..core.exceptions import RangeSplitError
from ..core.models import PartitionJobConfig
from ..counter import create_counter
from ..partition.partition_engine import PartitionEngine
from ..utils.value_parser import cast_value


class PartitionCLI:
    """Command-line interface for running partitioning jobs"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def load_job(self, config_path: str, ceiling: Optional[int] = None, sequential: bool = False,
                 lower: Optional[str] = None, upper: Optional[str] = None) -> PartitionJobConfig:
        """Load a job file and apply command-line overrides"""
        job = ConfigLoader.load_from_yaml(config_path)
        partitioner = job.partitioner
        if ceiling is not None:
            partitioner.ceiling = ceiling
        if sequential:
            partitioner.concurrent = False
        if lower is not None:
            partitioner.lower_bound = cast_value(lower, partitioner.field_type)
        if upper is not None:
            partitioner.upper_bound = cast_value(upper, partitioner.field_type)
        return job

    async def run_job(self, job: PartitionJobConfig) -> List[Dict[str, Any]]:
        """Run a partitioning job and return the partitions as dictionaries"""
        partitioner = job.partitioner
        self.logger.info(f"Starting partition job: {job.name}")

        async with create_counter(job.counter) as counter:
            if partitioner.lower_bound is None or partitioner.upper_bound is None:
                lower, upper = await counter.get_field_bounds(partitioner.field_name, partitioner.field_type)
                if lower is None or upper is None:
                    raise RangeSplitError(f"No values found for field '{partitioner.field_name}'")
                if partitioner.lower_bound is None:
                    partitioner.lower_bound = lower
                if partitioner.upper_bound is None:
                    partitioner.upper_bound = upper
                self.logger.info(
                    f"Discovered bounds for {partitioner.field_name}: "
                    f"{partitioner.lower_bound} - {partitioner.upper_bound}"
                )

            engine = PartitionEngine(counter, partitioner)
            partitions = await engine.generate_partitions()

        total = sum(p.document_count for p in partitions)
        self.logger.info(f"Partition job {job.name} completed: {len(partitions)} partitions, {total} records")
        return [p.to_dict(job.filter_dialect) for p in partitions]

    def write_output(self, partitions: List[Dict[str, Any]], output: Optional[str]) -> None:
        text = json.dumps(partitions, indent=2, default=str)
        if output:
            with open(output, 'w') as f:
                f.write(text + "\n")
            self.logger.info(f"Wrote {len(partitions)} partitions to {output}")
        else:
            click.echo(text)


@click.group()
@click.option('--log-level', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
              help='Set the logging level')
@click.pass_context
def cli(ctx, log_level):
    """Rangesplit - split a collection into size-bounded range partitions"""
    # Logs go to stderr so JSON on stdout stays clean
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )
    ctx.ensure_object(dict)
    ctx.obj['cli'] = PartitionCLI()


@cli.command()
@click.argument('config_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', default=None, help='Write partitions to this file instead of stdout')
@click.option('--ceiling', type=int, default=None, help='Maximum records per partition')
@click.option('--sequential', is_flag=True, help='Count one range at a time')
@click.option('--lower', default=None, help='Override the lower bound')
@click.option('--upper', default=None, help='Override the upper bound')
@click.pass_context
def partition(ctx, config_path, output, ceiling, sequential, lower, upper):
    """Generate partitions for the job in CONFIG_PATH"""
    cli_instance: PartitionCLI = ctx.obj['cli']
    try:
        job = cli_instance.load_job(config_path, ceiling, sequential, lower, upper)
        issues = ConfigLoader.validate_config(job)
        if issues:
            click.echo("Configuration validation issues:", err=True)
            for issue in issues:
                click.echo(f"  - {issue}", err=True)
            sys.exit(2)
        partitions = asyncio.run(cli_instance.run_job(job))
        cli_instance.write_output(partitions, output or job.output)
    except KeyboardInterrupt:
        cli_instance.logger.error("Partition job cancelled")
        sys.exit(130)
    except Exception as e:
        cli_instance.logger.error(f"Partition job failed: {e}")
        cli_instance.logger.debug("Partition job failure details", exc_info=True)
        sys.exit(1)


@cli.command()
@click.argument('config_path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx, config_path):
    """Validate the job in CONFIG_PATH without contacting the store"""
    try:
        job = ConfigLoader.load_from_yaml(config_path)
    except (OSError, ValueError) as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)
    issues = ConfigLoader.validate_config(job)
    if issues:
        click.echo("Configuration validation issues:", err=True)
        for issue in issues:
            click.echo(f"  - {issue}", err=True)
        sys.exit(1)
    click.echo(f"Configuration '{job.name}' is valid")


if __name__ == "__main__":
    cli()
