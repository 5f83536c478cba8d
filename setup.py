"""
Setup script for the sketchroom-sync package.

Installs the ``sketchroom`` client core from ``src/``. The Firestore
adapter is optional and pulled in with the ``firestore`` extra.
"""

from setuptools import setup, find_packages

setup(
    name="sketchroom-sync",
    version="1.0.0",
    description="Client-side room synchronization and phase state machine for a round-based drawing party game",
    author="Sketchroom Team",
    license="Proprietary",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.0",
    ],
    extras_require={
        "firestore": [
            "google-cloud-firestore>=2.11.0",
        ],
        "test": [
            "pytest>=7.4",
        ],
        "all": [
            "google-cloud-firestore>=2.11.0",
        ],
        "dev": [
            "pytest>=7.4",
            "build",
            "wheel",
        ],
    },
    package_data={
        "sketchroom": ["_profile/schema.sql"],
    },
    entry_points={
        "console_scripts": [
            "sketchroom=sketchroom.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
