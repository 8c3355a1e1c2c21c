"""
RunMemories - personalized running poster storefront backend
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

with open("requirements-dev.txt", "r", encoding="utf-8") as fh:
    test_requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="runmemories",
    version="0.1.0",
    author="RunMemories",
    author_email="contact@runmemories.com",
    description="Order fulfillment backend for personalized running posters",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Framework :: FastAPI",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={"test": test_requirements},
    entry_points={
        "console_scripts": [
            "runmemories=main:main",
        ],
    },
    include_package_data=True,
    package_data={
        "d9_delivery": ["templates/*.html"],
    },
)
