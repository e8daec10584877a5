from setuptools import setup, find_packages

setup(
    name="bond-cashflow-engine",
    version="0.1.0",
    description="Bond cash-flow schedule engine (German / French amortization, TCEA / TREA, duration, convexity)",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
