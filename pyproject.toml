[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "opn2emu"
version = "0.1.0"
description = "Cycle-level emulator of the YM2612/YM3438 (OPN2) FM synthesis chip with a sample-producing playback driver"
requires-python = ">=3.10"
dependencies = []
keywords = ["opn2", "ym2612", "ym3438", "fm synthesis", "emulator", "chiptune"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["opn2emu"]

[tool.pytest.ini_options]
addopts = "-ra"
