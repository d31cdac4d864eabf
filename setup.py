from setuptools import setup, find_namespace_packages

setup(
    name="kubb-trainer",
    version="0.1.0",
    description="Kubb training tracker with session statistics and a wearable bridge",
    author="Kubb Trainer",
    packages=find_namespace_packages(include=["kubb_trainer", "kubb_trainer.*"]),
    package_data={"kubb_trainer.database": ["schema.sql"]},
    python_requires=">=3.11",
    install_requires=[
        "PyQt6>=6.6.0",
        "numpy>=1.26.0",
        "scipy>=1.12.0",
    ],
    extras_require={
        "test": ["pytest>=8.0.0", "pytest-qt>=4.4.0"],
    },
    entry_points={
        "console_scripts": [
            "kubbtrainer=kubb_trainer.main:main",
        ],
    },
)
