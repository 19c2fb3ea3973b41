from setuptools import find_packages, setup

setup(
    name="globwatch",
    version="1.0.1",
    description="Watches the file system using glob patterns and runs commands on changes",
    author="Araray Velho",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click",
        "toml",
        "pyyaml",
        "rich",
        "watchdog",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "globwatch=globwatch.cli:main"
        ]
    },
)
