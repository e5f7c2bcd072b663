from setuptools import setup, find_packages

setup(
    name="notecapture",
    version="0.1.0",
    description="Personal note capture with normalized audio recordings and waveforms",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyaudio>=0.2.11",
        "numpy>=1.21.0",
        "soundfile>=0.12.0",
        "rich>=12.5.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "scipy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "notecapture=notecapture.main:main",
        ],
    },
)
