from setuptools import setup, find_packages

setup(
    name="bounty-board-governance",
    version="1.0.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "solana>=0.34.0",
        "solders>=0.21.0",
        "borsh-construct>=0.1.0",
        "construct>=2.10.0",
        "base58>=2.1.0",
        "httpx>=0.23.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "tenacity>=8.0.0",
        "prometheus-client>=0.15.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    python_requires=">=3.9",
    author="Bounty Board Team",
    description="Governance proposal assembly and submission for the DAO bounty board",
)
