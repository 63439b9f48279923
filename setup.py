"""Setup script for appcatalog."""

from setuptools import setup, find_packages

setup(
    name="appcatalog",
    version="1.0.0",
    description="Versioned Application Catalog",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "boto3>=1.26.0",
        "PyYAML>=6.0",
        "psycopg2-binary>=2.9.0",
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        "console_scripts": [
            "appcatalog=appcatalog.main:main",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
