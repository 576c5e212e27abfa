#!/usr/bin/env python3
#
# see: https://setuptools.pypa.io/en/latest/userguide/quickstart.html

import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name="gridtune",
    version="0.3.0",
    description="Parallel-dispatch gate and grid-search helpers for model tuning workflows.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    package_dir={"": "src"},
    packages=setuptools.find_packages(where="src"),
    install_requires=["joblib", "matplotlib", "numpy", "pandas", "scikit-learn"],
    extras_require={"test": ["pytest"]},
    python_requires=">=3.11",
)
