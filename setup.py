"""
Setup script for the three-station CDMA channel package.
"""

from setuptools import setup, find_packages

setup(
    name="cdma-channel",
    version="0.1.0",
    description="Three-station CDMA channel simulator with Walsh spreading over sockets",
    author="Sarthak Munshi",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.24.0",
        "scipy>=1.10.0",
        "tqdm>=4.65.0",
        "pyyaml>=6.0",
        "scikit-learn>=1.3.0",
        "matplotlib>=3.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "black>=23.0.0",
            "isort>=5.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cdma-simulate=cdma.cli:simulate_main",
            "cdma-server=cdma.cli:server_main",
            "cdma-client=cdma.cli:client_main",
            "cdma-exp1=experiments.exp1_reference_trace:main",
            "cdma-exp2=experiments.exp2_exhaustive_sweep:main",
            "cdma-exp3=experiments.exp3_code_families:main",
        ],
    },
)
