from setuptools import setup, find_packages

setup(
    name="pixelwars",
    version="0.1",
    package_dir={"": "src"},
    packages=find_packages("src"),
    description="Grid-based artificial-life simulator: species of pixels with mutated stats fight for territory.",
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "pygame",
    ],
    extras_require={
        "plot": ["matplotlib"],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "pixelwars=pixelwars.engine:main",
        ],
    },
)
