import subprocess

import pandas as pd

from drawem.slurm import SlurmBatchJobManager, partition_csv
from drawem.slurm.cli import main
from drawem.slurm.config import BatchJobConfig


def write_subjects(path, n):
    pd.DataFrame({"t2": [f"sub-{i}.nii.gz" for i in range(n)], "age": [40] * n}).to_csv(str(path), index=False)
    return path


def test_partition_csv(tmp_path):
    csv_path = write_subjects(tmp_path.joinpath("subjects.csv"), 5)
    csvs = partition_csv(csv_path, n_partition=2, output_dir=tmp_path.joinpath("partitions"))
    assert [len(pd.read_csv(str(csv))) for csv in csvs] == [3, 2]


def test_to_sbatch(tmp_path):
    config = BatchJobConfig(
        command="drawem-batch --csv-file a.csv --output-dir out", nodelist="node01",
        venv_activate_path=tmp_path.joinpath("venv", "bin", "activate"), n_cpu=4, mem=2048,
    )
    sbatch = config.to_sbatch()
    assert sbatch.startswith("#!/bin/bash")
    assert "#SBATCH --cpus-per-task=4" in sbatch
    assert "#SBATCH --mem=2048" in sbatch
    assert "#SBATCH --partition=roclong" in sbatch
    assert "#SBATCH --nodelist=node01" in sbatch
    assert "source {}".format(tmp_path.joinpath("venv", "bin", "activate")) in sbatch
    assert sbatch.rstrip().endswith("drawem-batch --csv-file a.csv --output-dir out")

    sbatch = BatchJobConfig(command="true").to_sbatch()
    assert "nodelist" not in sbatch
    assert "source" not in sbatch


def test_make_batch_command(tmp_path):
    command = SlurmBatchJobManager.make_batch_command(tmp_path.joinpath("a.csv"), tmp_path, "-atlas ALBERT")
    assert command == "drawem-batch --csv-file {} --output-dir {} -atlas ALBERT".format(
        tmp_path.joinpath("a.csv"), tmp_path
    )


def test_submit(tmp_path, monkeypatch):
    submitted = []

    def fake_run(command, check):
        submitted.append(command)
        return subprocess.CompletedProcess(command, 0)

    monkeypatch.setattr(subprocess, "run", fake_run)
    manager = SlurmBatchJobManager(temp_dir=tmp_path.joinpath("jobs"))
    batch_files = manager.submit([BatchJobConfig(command="true"), BatchJobConfig(command="false")])
    assert submitted == [["sbatch", str(batch_file)] for batch_file in batch_files]
    assert batch_files[1].read_text().rstrip().endswith("false")


def test_cli_dry_run(tmp_path):
    csv_path = write_subjects(tmp_path.joinpath("subjects.csv"), 3)
    conf_path = tmp_path.joinpath("batch.conf")
    conf_path.write_text(
        "batch {{\n"
        "  csv_file = \"{csv}\"\n"
        "  partition_csv_dir = \"{partitions}\"\n"
        "  output_dir = \"{output}\"\n"
        "  job_args = \"-threads 4\"\n"
        "  jobs = [{{n_cpu = 4, mem = 8192, nodelist = \"node01\"}}, {{n_cpu = 2}}]\n"
        "}}\n".format(csv=csv_path, partitions=tmp_path.joinpath("partitions"), output=tmp_path.joinpath("out"))
    )
    batch_dir = tmp_path.joinpath("jobs")
    assert main(["--batch-conf", str(conf_path), "--batch-dir", str(batch_dir), "--dry-run"]) == 0
    job_0 = batch_dir.joinpath("job_0.sh").read_text()
    job_1 = batch_dir.joinpath("job_1.sh").read_text()
    assert "#SBATCH --nodelist=node01" in job_0
    assert "#SBATCH --cpus-per-task=2" in job_1
    assert "#SBATCH --mem=16384" in job_1
    assert "--csv-file {}".format(tmp_path.joinpath("partitions", "partition_csv_1.csv")) in job_1
    assert job_1.rstrip().endswith("-threads 4")


def test_cli_missing_keys(tmp_path):
    conf_path = tmp_path.joinpath("batch.conf")
    conf_path.write_text("batch { jobs = [{n_cpu = 1}] }\n")
    assert main(["--batch-conf", str(conf_path), "--dry-run"]) == 1
