"""Set-up file for blackoil-ad for installations using ``pip install .``"""
from setuptools import find_packages, setup


with open("requirements.txt") as f:
    required = f.read().splitlines()


setup(
    name="blackoil-ad",
    version="0.1.0",
    license="GPL",
    keywords=["porous media simulation black-oil automatic differentiation"],
    install_requires=required,
    extras_require={"testing": ["pytest"]},
    description=(
        "Forward-mode block automatic differentiation, IMPES pressure assembly and "
        "relaxed Newton iterations for black-oil reservoir simulation"
    ),
    platforms=["Linux", "Windows", "Mac OS-X"],
    package_data={"blackoil": ["py.typed"]},
    packages=find_packages("src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    zip_safe=False,
)
