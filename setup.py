from setuptools import setup, find_packages

setup(
    name="fieldpath-terminal",
    version="1.0.0",
    description="Field path geometry and playback terminal",
    packages=find_packages(include=["fieldpath", "fieldpath.*"]),
    py_modules=["main"],
    include_package_data=True,
    package_data={"": ["*.json"]},
    install_requires=[
        "pygame>=2.1.0",
        "requests>=2.25",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
)
