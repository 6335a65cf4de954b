import logging
import dataclasses
import pandas as pd
import multiprocessing as mp
from tqdm import tqdm
from pathlib import Path
from typing import List
from argparse import ArgumentTypeError
from nibabel.filebasedimages import ImageFileError

from drawem.image import subject_name
from drawem.common.errors import DrawEMError, ScriptError
from drawem.environment import DrawEMEnvironment
from drawem.pipeline.config import PipelineConfig, round_age
from drawem.pipeline.pipeline import NeonatalPipeline

LOGGER = logging.getLogger("DrawEM.batch")

REQUIRED_COLUMNS = ("t2", "age")


@dataclasses.dataclass
class SubjectResult:
    subject: str
    status: str
    failed_script: str = None
    message: str = None

    @property
    def ok(self) -> bool:
        return self.status == "finished"


def read_subjects(csv_path: Path) -> pd.DataFrame:
    """ Read the subject list

    Args:
        csv_path: csv file with columns ``t2`` and ``age``, optionally ``mask`` and ``subject``

    Returns:
        dataframe with one row per subject, missing optional columns filled with None.
        Subject names, given or derived from the T2 file name, must be unique.
    """
    df = pd.read_csv(str(csv_path), dtype={"subject": str})
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"{csv_path} is missing column(s): {', '.join(missing)}")
    incomplete = df[df[list(REQUIRED_COLUMNS)].isna().any(axis=1)]
    if len(incomplete):
        raise ValueError(f"{csv_path} has rows without t2 or age: {', '.join(str(i) for i in incomplete.index)}")
    for column in ("mask", "subject"):
        if column not in df.columns:
            df[column] = None
    df = df.astype(object).where(df.notna(), None)
    subjects = [row_subject(row) for row in df.to_dict("records")]
    duplicates = sorted(set(subject for subject in subjects if subjects.count(subject) > 1))
    if duplicates:
        raise ValueError(f"{csv_path} lists subject(s) more than once: {', '.join(duplicates)}")
    return df


def row_subject(row: dict) -> str:
    return str(row["subject"]) if row.get("subject") else subject_name(row["t2"])


def run_subject(row: dict, output_dir: Path, environment: DrawEMEnvironment, options: dict) -> SubjectResult:
    """Run the pipeline for one csv row in output_dir/<subject>, never raising for a failed subject"""
    subject = row_subject(row)
    try:
        config = PipelineConfig(
            t2_path=Path(row["t2"]),
            age=round_age(str(row["age"])),
            mask_path=Path(row["mask"]) if row.get("mask") else None,
            data_dir=output_dir.joinpath(subject),
            subject=subject,
            command=f"batch subject {subject}",
            **options,
        )
        NeonatalPipeline(config=config, environment=environment).run()
    except ScriptError as e:
        LOGGER.error("%s: %s", subject, e)
        return SubjectResult(subject=subject, status="failed", failed_script=e.script.name, message=str(e))
    except (DrawEMError, OSError, ImageFileError, ValueError, ArgumentTypeError) as e:
        LOGGER.error("%s: %s", subject, e)
        return SubjectResult(subject=subject, status="failed", message=str(e))
    return SubjectResult(subject=subject, status="finished")


class BatchRunner:
    """Runs the neonatal pipeline for every subject of a csv file, sequentially or in a process pool"""
    def __init__(self, environment: DrawEMEnvironment, output_dir: Path, options: dict, n_thread: int = 0):
        self.environment = environment
        self.output_dir = output_dir
        self.options = options
        self.n_thread = n_thread

    def run(self, subjects: pd.DataFrame) -> List[SubjectResult]:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        rows = subjects.to_dict("records")
        pbar = tqdm(total=len(rows))
        if self.n_thread == 0:
            results = []
            for row in rows:
                results.append(run_subject(row, self.output_dir, self.environment, self.options))
                pbar.update()
        else:
            def update(*a):
                pbar.update()
            pool = mp.Pool(processes=self.n_thread)
            async_results = [
                pool.apply_async(
                    func=run_subject, args=(row, self.output_dir, self.environment, self.options), callback=update
                ) for row in rows
            ]
            pool.close()
            pool.join()
            results = [result.get() for result in async_results]
        pbar.close()
        return results

    def write_report(self, results: List[SubjectResult], report_path: Path) -> Path:
        df = pd.DataFrame([dataclasses.asdict(result) for result in results],
                          columns=["subject", "status", "failed_script", "message"])
        df.to_csv(str(report_path), index=False)
        return report_path
