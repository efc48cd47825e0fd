from setuptools import setup, find_packages


with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="redoroute",
    version="0.1.0",
    description=(
        "Redo-transport topology modeling, validation and RedoRoutes generation."
    ),
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"redoroute.schemas": ["*.json"]},
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "jsonschema",
        "networkx",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["redoroute=redoroute.cli:main"],
    },
)
