import shlex
import logging
import tempfile
import subprocess
import numpy as np
import pandas as pd
from typing import List
from pathlib import Path

from drawem.slurm.config import BatchJobConfig

LOGGER = logging.getLogger("DrawEM.slurm")


def partition_csv(csv_path: Path, n_partition: int, output_dir: Path) -> List[Path]:
    output_dir.mkdir(exist_ok=True, parents=True)
    df = pd.read_csv(str(csv_path))
    csvs = []
    for i, indices in enumerate(np.array_split(np.arange(len(df)), n_partition)):
        df.iloc[indices].to_csv(str(output_dir.joinpath(f"partition_csv_{i}.csv")), index=False)
        csvs.append(output_dir.joinpath(f"partition_csv_{i}.csv"))
    return csvs


class SlurmBatchJobManager:
    def __init__(self, temp_dir: Path = None):
        if temp_dir is None:
            temp_dir = Path(tempfile.mkdtemp())
        self.temp_dir = temp_dir

    @staticmethod
    def make_batch_command(csv_file: Path, output_dir: Path, job_args: str = "") -> str:
        command = "drawem-batch --csv-file {csv_file} --output-dir {output_dir}".format(
            csv_file=shlex.quote(str(csv_file)), output_dir=shlex.quote(str(output_dir)),
        )
        if job_args:
            command += " " + job_args
        return command

    def create_batch_files(self, configs: List[BatchJobConfig]) -> List[Path]:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        batch_files = []
        for idx, config in enumerate(configs):
            batch_file = self.temp_dir.joinpath(f"job_{idx}.sh")
            with open(str(batch_file), "w") as file:
                file.write(config.to_sbatch())
            batch_files.append(batch_file)
        return batch_files

    def submit(self, configs: List[BatchJobConfig], dry_run: bool = False) -> List[Path]:
        batch_files = self.create_batch_files(configs)
        for batch_file in batch_files:
            if dry_run:
                LOGGER.info("Batch file written to {}".format(batch_file))
                continue
            LOGGER.info("sbatch {}".format(batch_file))
            subprocess.run(["sbatch", str(batch_file)], check=True)
        return batch_files
