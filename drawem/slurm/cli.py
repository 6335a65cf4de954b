import sys
import logging
import subprocess
from typing import List
from pathlib import Path
from argparse import ArgumentParser
from pyhocon import ConfigTree

from drawem.common.config import load_conf
from drawem.slurm import SlurmBatchJobManager, partition_csv
from drawem.slurm.config import BatchJobConfig

LOGGER = logging.getLogger("DrawEM.slurm")

REQUIRED_KEYS = ("csv_file", "partition_csv_dir", "output_dir", "jobs")


def get_conf(conf: ConfigTree, key: str = "", default=None):
    key = ".".join(["batch", key])
    return conf.get(key, default)


def make_job_configs(batch_conf: ConfigTree) -> List[BatchJobConfig]:
    """
    One job per entry of ``batch.jobs``, each processing one partition of ``batch.csv_file``.

    .. code-block:: text

        batch {
            csv_file = /data/subjects.csv
            partition_csv_dir = /data/partitions
            output_dir = /data/derivatives
            job_args = "-atlas ALBERT -threads 8"
            venv_activate_path = /home/user/venv/bin/activate
            jobs = [
                {n_cpu = 8, mem = 16384, nodelist = "node01"},
                {n_cpu = 8, mem = 16384},
            ]
        }
    """
    for key in REQUIRED_KEYS:
        if get_conf(batch_conf, key=key) is None:
            raise ValueError(f"batch.{key} is missing from the batch configuration")
    csv_file = Path(get_conf(batch_conf, key="csv_file"))
    partition_csv_dir = Path(get_conf(batch_conf, key="partition_csv_dir"))
    output_dir = Path(get_conf(batch_conf, key="output_dir"))
    job_args = get_conf(batch_conf, key="job_args", default="")
    venv_activate_path = get_conf(batch_conf, key="venv_activate_path")
    partition = get_conf(batch_conf, key="partition")

    jobs = get_conf(batch_conf, key="jobs")
    if not jobs:
        raise ValueError("batch.jobs must list at least one job")

    csv_files = partition_csv(csv_path=csv_file, n_partition=len(jobs), output_dir=partition_csv_dir)
    configs = []
    for job, csv_file in zip(jobs, csv_files):
        kwargs = dict(
            command=SlurmBatchJobManager.make_batch_command(csv_file, output_dir, job_args),
            nodelist=job.get("nodelist", None),
            venv_activate_path=Path(venv_activate_path) if venv_activate_path else None,
        )
        for key in ("n_cpu", "mem"):
            if job.get(key, None) is not None:
                kwargs[key] = job.get(key)
        if partition is not None:
            kwargs["partition"] = partition
        configs.append(BatchJobConfig(**kwargs))
    return configs


def main(argv: List[str] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = ArgumentParser()
    parser.add_argument("--batch-conf", dest="batch_conf", type=str, required=True)
    parser.add_argument("--batch-dir", dest="batch_dir", type=str, default=None,
                        help="Where the sbatch files are written, a temporary directory by default")
    parser.add_argument("--dry-run", dest="dry_run", action="store_true", help="Write the sbatch files only")
    args = parser.parse_args(argv)

    try:
        batch_conf = load_conf(Path(args.batch_conf))
        configs = make_job_configs(batch_conf)
        manager = SlurmBatchJobManager(temp_dir=Path(args.batch_dir) if args.batch_dir is not None else None)
        manager.submit(configs=configs, dry_run=args.dry_run)
    except (FileNotFoundError, ValueError, subprocess.CalledProcessError) as e:
        LOGGER.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
