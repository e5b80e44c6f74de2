from setuptools import setup

setup(
    name="hamlc",
    version="0.1.0",
    description="Compiles indentation-based Haml templates into Python template functions",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=['hamlc'],
    python_requires=">=3.8",
    install_requires=[
        "watchdog",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["hamlc=hamlc.__main__:main"],
    },
)
