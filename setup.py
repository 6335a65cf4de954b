from pathlib import Path
from setuptools import setup, find_namespace_packages


setup(
    name="drawem",
    version=Path(__file__).parent.joinpath("VERSION").read_text().strip(),
    author="Antonios Makropoulos",
    description="Developing brain Region Annotation With Expectation-Maximization (Draw-EM), neonatal segmentation driver",
    package_dir={"": "."},
    packages=find_namespace_packages(include=["drawem", "drawem.*"]),
    setup_requires=["setuptools >= 40.0.0"],
    package_data={"": ["*.conf", "*.txt"]},
    include_package_data=True,
    python_requires=">=3.7",
    entry_points={
        "console_scripts": [
            "drawem-neonatal-segmentation = drawem.pipeline.cli:main",
            "drawem-batch = drawem.batch.cli:main",
            "drawem-slurm-submit = drawem.slurm.cli:main",
        ]
    },
    install_requires=[
        "numpy",
        "nibabel",
        "pandas",
        "pyhocon",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
