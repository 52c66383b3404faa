# setup.py - Package configuration for the fio Prometheus exporter

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="fio-exporter",
    version="0.1.0",
    author="CloudClub",
    author_email="example@cloudclub.com",
    description="Prometheus exporter for periodic fio storage benchmarks",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/cloudclub/fio-exporter",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Monitoring",
        "Topic :: System :: Benchmark",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "fio-exporter=fio_exporter.cli:cli",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
