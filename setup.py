#!/usr/bin/env python
"""
Coffee Shop Sales Analytics Setup
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="coffee-analytics",
    version="1.0.0",
    description="KPI aggregation and profit segmentation over coffee shop sales exports",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
        "Topic :: Database",
        "Topic :: Scientific/Engineering :: Information Analysis",
    ],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "httpx>=0.25.0",
            "black>=23.0.0",
            "ruff>=0.1.0",
            "mypy>=1.5.0",
        ],
        "server": [
            "gunicorn>=21.2.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "coffee-reports=coffee_analytics.cli:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords=[
        "analytics",
        "kpi",
        "pareto",
        "polars",
        "fastapi",
        "reporting",
    ],
)
