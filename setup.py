"""
vidtext setuptools build script.

Usage:
    # Development (editable, links to source):
    pip install -e .

    # Run the tests:
    python -m unittest discover -s tests

External programs (not pip-installable here): yt-dlp and ffmpeg must be on PATH.
"""

from setuptools import setup

APP_NAME = "vidtext"

PACKAGES = [
    "vidtext",
    "vidtext.core",
]

setup(
    name=APP_NAME,
    version="1.0.0",
    description="Video URL to transcript record service (yt-dlp, ffmpeg, speech-to-text)",
    packages=PACKAGES,
    py_modules=["main"],
    install_requires=[
        "requests>=2.28.0",
    ],
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "vidtext=main:main",
        ],
    },
)
