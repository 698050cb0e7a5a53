from setuptools import setup, find_packages

setup(
    name="crypto-strategy-lab",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"config": ["settings.yaml"]},
    install_requires=[
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
        "pandas>=2.0.0",
        "numpy>=1.24.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
        "dev": [
            "pytest>=7.4.0",
            "black>=23.7.0",
            "isort>=5.12.0",
            "flake8>=6.1.0",
            "mypy>=1.4.1",
        ]
    },
    python_requires=">=3.11",
)
