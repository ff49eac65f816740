# setup.py
from setuptools import setup, find_packages

setup(
    name="repocontext",
    version="1.0.0",
    description="Tri-state file selection and folder size aggregation over repository listings",
    author="Enrique Paredes",
    author_email="eparedesbalen@gmail.com",
    package_dir={"": "src"},
    packages=find_packages(where="src", include=["repocontext", "repocontext.*"]),
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.28",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'repocontext=repocontext.main:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
