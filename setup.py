# setup.py
from setuptools import find_packages, setup

setup(
    name="dynatable",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "boto3",
        "pydantic",
        "ulid-py",
        "moto",
        "boto3-stubs[dynamodb]",
    ],
    extras_require={
        "test": [
            "pytest",
            "freezegun",
        ],
    },
    description="Typed records and tables on top of the DynamoDB low level client",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
)
