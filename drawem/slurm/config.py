import dataclasses
from dataclasses import field
from pathlib import Path

from drawem.common.config import DRAWEM_CONF, get_conf


@dataclasses.dataclass
class BatchJobConfig:
    command: str
    nodelist: str = None
    venv_activate_path: Path = None
    partition: str = field(default=get_conf(DRAWEM_CONF, group="slurm", key="partition"))
    n_cpu: int = field(default=get_conf(DRAWEM_CONF, group="slurm", key="n_cpu"))
    mem: int = field(default=get_conf(DRAWEM_CONF, group="slurm", key="mem"))
    log_output: str = field(default=get_conf(DRAWEM_CONF, group="slurm", key="log_output"))
    template_path: Path = field(default=Path(__file__).parent.joinpath("batch_template_cpu.txt"))

    def to_sbatch(self) -> str:
        with open(str(self.template_path), "r") as file:
            sbatch = file.read()
        directives = []
        if self.nodelist:
            directives.append(f"#SBATCH --nodelist={self.nodelist}")
        setup = []
        if self.venv_activate_path is not None:
            setup.append(f"source {self.venv_activate_path}")
        sbatch = sbatch.format(
            n_cpu=self.n_cpu,
            mem=self.mem,
            log_output=self.log_output,
            partition=self.partition,
            directives="\n".join(directives),
            setup="\n".join(setup),
            command=self.command,
        )
        return sbatch
