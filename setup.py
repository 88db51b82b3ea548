"""
Setup script for moviemath package.
"""

from setuptools import setup, find_packages

setup(
    name="moviemath",
    version="0.1.0",
    packages=find_packages(include=["moviemath", "moviemath.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",

        # Web server
        "fastapi>=0.70.0",
        "uvicorn>=0.15.0",
        "pydantic>=1.8.0",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
            "scikit-learn>=1.0.0",
            "httpx>=0.23.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'moviemath=moviemath.__main__:main',
        ],
    },
    description="PCA and k-means exploration of movie financial and critical metrics",
    keywords="pca, k-means, clustering, movies, visualization",
    python_requires=">=3.8",
)
