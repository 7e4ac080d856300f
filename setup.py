# inpaint/setup.py
from setuptools import find_namespace_packages, setup

setup(
    name="inpaint",
    version="0.1.0",
    description="Exemplar based image inpainting and PatchMatch correspondences",
    packages=find_namespace_packages(include=["inpaint", "inpaint.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python",
        "torch",
        "pydantic",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
