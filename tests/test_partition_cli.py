"""
Test cases for the partition command-line interface.
"""

import json
import pytest
import yaml
from click.testing import CliRunner

from rangesplit.cli.partition_cli import PartitionCLI, cli


def write_job(tmp_path, **overrides):
    job = {
        "name": "memory-job",
        "field": {"name": "id", "type": "integer"},
        "ceiling": 40,
        "counter": {"type": "memory", "values": list(range(100))},
    }
    job.update(overrides)
    config_file = tmp_path / "job.yaml"
    config_file.write_text(yaml.safe_dump(job))
    return str(config_file)


@pytest.fixture
def runner():
    return CliRunner()


class TestPartitionCommand:
    """rangesplit partition CONFIG_PATH"""

    def test_partitions_written_to_file(self, runner, tmp_path):
        # Arrange
        config_path = write_job(tmp_path, lower_bound=0, upper_bound=99)
        output = tmp_path / "partitions.json"

        # Act
        result = runner.invoke(cli, ["--log-level", "WARNING", "partition", config_path, "--output", str(output)])

        # Assert
        assert result.exit_code == 0, result.output
        partitions = json.loads(output.read_text())
        assert sum(p["document_count"] for p in partitions) == 100
        assert all(p["document_count"] <= 40 for p in partitions)
        assert partitions[0]["filter"].startswith("id ge 0 and")
        assert partitions[-1]["upper_bound"] == 99

    def test_partitions_printed_to_stdout(self, runner, tmp_path):
        config_path = write_job(tmp_path, lower_bound=0, upper_bound=99, ceiling=1000)

        result = runner.invoke(cli, ["--log-level", "ERROR", "partition", config_path])

        assert result.exit_code == 0
        partitions = json.loads(result.stdout)
        assert partitions == [{
            "field": "id",
            "lower_bound": 0,
            "upper_bound": 99,
            "document_count": 100,
            "irreducible": False,
            "filter": "id ge 0 and id le 99",
        }]

    def test_bounds_are_discovered_when_missing(self, runner, tmp_path):
        config_path = write_job(tmp_path, counter={"type": "memory", "values": [5, 7, 9, 11]})
        output = tmp_path / "partitions.json"

        result = runner.invoke(cli, ["partition", config_path, "-o", str(output)])

        assert result.exit_code == 0
        partitions = json.loads(output.read_text())
        assert partitions[0]["lower_bound"] == 5
        assert partitions[-1]["upper_bound"] == 11

    def test_command_line_overrides(self, runner, tmp_path):
        config_path = write_job(tmp_path, lower_bound=0, upper_bound=99)
        output = tmp_path / "partitions.json"

        result = runner.invoke(cli, [
            "partition", config_path, "-o", str(output),
            "--ceiling", "1000", "--sequential", "--lower", "10", "--upper", "19",
        ])

        assert result.exit_code == 0
        partitions = json.loads(output.read_text())
        assert len(partitions) == 1
        assert partitions[0]["document_count"] == 10

    def test_naive_lower_override_with_aware_configured_bound(self, runner, tmp_path):
        values = [f"2024-01-{day:02d}T12:00:00Z" for day in range(1, 31)]
        config_path = write_job(
            tmp_path,
            field={"name": "created", "type": "datetime"},
            lower_bound="2024-01-01T00:00:00Z",
            upper_bound="2024-01-31T00:00:00Z",
            ceiling=10,
            counter={"type": "memory", "values": values},
        )
        output = tmp_path / "partitions.json"

        result = runner.invoke(cli, ["partition", config_path, "-o", str(output), "--lower", "2024-01-10T00:00:00"])

        assert result.exit_code == 0, result.output
        partitions = json.loads(output.read_text())
        assert sum(p["document_count"] for p in partitions) == 21
        assert partitions[0]["filter"].startswith("created ge 2024-01-10T00:00:00.000000Z")

    def test_invalid_configuration_exits_with_2(self, runner, tmp_path):
        config_path = write_job(tmp_path, counter={"type": "search"})

        result = runner.invoke(cli, ["partition", config_path])

        assert result.exit_code == 2
        assert "Search counter must specify endpoint" in result.output

    def test_failed_job_exits_with_1(self, runner, tmp_path):
        config_path = write_job(tmp_path, counter={"type": "memory", "values": []})

        result = runner.invoke(cli, ["partition", config_path])

        assert result.exit_code == 1


class TestValidateCommand:
    """rangesplit validate CONFIG_PATH"""

    def test_valid_configuration(self, runner, tmp_path):
        config_path = write_job(tmp_path)

        result = runner.invoke(cli, ["validate", config_path])

        assert result.exit_code == 0
        assert "Configuration 'memory-job' is valid" in result.output

    def test_validation_issues(self, runner, tmp_path):
        config_path = write_job(tmp_path, ceiling=0)

        result = runner.invoke(cli, ["validate", config_path])

        assert result.exit_code == 1
        assert "ceiling must be a positive integer" in result.output

    def test_unreadable_configuration(self, runner, tmp_path):
        config_file = tmp_path / "job.yaml"
        config_file.write_text(yaml.safe_dump({"name": "no-field"}))

        result = runner.invoke(cli, ["validate", str(config_file)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestPartitionCLI:
    """PartitionCLI helpers"""

    @pytest.mark.asyncio
    async def test_run_job_discovers_bounds_and_serialises(self, tmp_path):
        partition_cli = PartitionCLI()
        job = partition_cli.load_job(write_job(tmp_path, ceiling=1000))

        partitions = await partition_cli.run_job(job)

        assert job.partitioner.lower_bound == 0
        assert job.partitioner.upper_bound == 99
        assert partitions == [{
            "field": "id",
            "lower_bound": 0,
            "upper_bound": 99,
            "document_count": 100,
            "irreducible": False,
            "filter": "id ge 0 and id le 99",
        }]

    def test_load_job_applies_overrides(self, tmp_path):
        job = PartitionCLI().load_job(write_job(tmp_path), ceiling=5, sequential=True, lower="3", upper="8")

        assert job.partitioner.ceiling == 5
        assert job.partitioner.concurrent is False
        assert (job.partitioner.lower_bound, job.partitioner.upper_bound) == (3, 8)
