from setuptools import setup, find_packages

setup(
    name="clarify",
    version="0.1.0",
    description="Clarify — live grammar annotations for text fields",
    packages=find_packages(exclude=("tests",)),
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.28",
        "PyQt5>=5.15",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "clarify=clarify.main:main",
        ],
    },
    package_data={
        "clarify": [
            "resources/*",
        ],
    },
    include_package_data=True,
)
