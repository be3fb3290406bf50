from setuptools import setup

with open("hive/version.py") as f:
    exec(f.read())

setup(
    name="python-hive",
    version=__version__,  # type: ignore # noqa: F821
    description="Python API for logging in to Hive home automation",
    url="https://github.com/python-hive/python-hive",
    author="",
    author_email="",
    license="GPLv3",
    packages=["hive", "hive.auth", "hive.cli"],
    install_requires=[
        "aiohttp>=3",
        "yarl",
        "cryptography>=1.9",
        "mashumaro>=3.14",
        "asyncclick>=8.4",
    ],
    extras_require={
        "speedups": ["orjson>=3.9.1"],
        "shell": ["rich"],
        "test": [
            "pytest",
            "pytest-asyncio",
            "pytest-mock",
            "freezegun",
            "pytest-freezer",
        ],
    },
    python_requires=">=3.11",
    entry_points={"console_scripts": ["hive=hive.cli.main:cli"]},
    zip_safe=False,
)
