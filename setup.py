from setuptools import setup, find_packages

setup(
    name="homesnap",
    version="0.1.0",
    description="homesnap creates and restores encrypted, compressed snapshots of your home directory using tar, zstd and gpg.",
    author="Dominik Püllen",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=["pyyaml", 
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "homesnap=homesnap.main:main", 
        ],
    },
    python_requires=">=3.9",
)
