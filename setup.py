from setuptools import setup, find_packages

setup(
    name="olsr_lite",
    version="1.0.0",
    description="链路状态路由仿真：拓扑图、Dijkstra 路由与链路迟滞控制",
    author="Your Name",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "networkx>=2.6.0",
        "click>=8.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "olsr_lite=olsr_lite.main:main",
        ],
    },
    python_requires=">=3.7",
)
