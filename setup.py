"""Package setup for sitesweep."""

from setuptools import setup, find_packages

setup(
    name="sitesweep",
    version="1.0.0",
    description="Concurrent same-host site crawler with bot-protection recovery",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
        "beautifulsoup4>=4.12.0",
        "lxml>=5.0.0",
        "urllib3>=2.0.0",
        "tqdm>=4.66.0",
        "colorlog>=6.8.0",
        "pypdf>=4.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "capture": [
            "playwright>=1.40.0",
        ],
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sitesweep=sitesweep.cli:main",
        ],
    },
)
