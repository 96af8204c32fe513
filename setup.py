from setuptools import setup, find_packages

setup(
    name="static_arithmetic_coding",
    version="0.0.1",
    packages=find_packages(include=["sac", "sac.*"]),
    description="Arithmetic coding of symbol sequences to real-valued intervals, with a static probability model",
    license="MIT",
    install_requires=[
        "pytest",
        "numpy",
    ],
)
