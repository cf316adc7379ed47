from setuptools import setup, find_packages

setup(
    name="craps-agents",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"craps_agents.data": ["*.json"]},
    install_requires=[
        "python-dotenv>=1.0.0",
        "aiohttp>=3.9.0",
        "click>=8.1.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "crapsagents=craps_agents.cli:main",
        ],
    },
    python_requires=">=3.10",
)
