"""
Setup script for cognitive-os.

Cognitive OS tracks cognitive skills across training modules and plans
the next training session. It has three parts:

1. Skill Graph - Elo-style ratings for every skill a module trains
2. Activity Log - Session lifecycle and training history
3. Session Composer - Focus/variety session plans with fatigue control

The 'cogos' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="cognitive-os",
    version="1.0.0",
    description="Skill tracking and adaptive session planning for cognitive training",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["cognitive_os", "cognitive_os.*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cogos=cognitive_os.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="cognitive-training elo skills cli education",
)
