# setup.py
from setuptools import setup, find_packages

setup(
    name="scenepilot",
    version="0.1.0",
    description="Apply AI assistant edit directives to project scripts and scene graphs, with batched undo. "
                "Composed of the scenepilot, scenegraph and scenecontext libraries.",
    author="ScenePilot Team",
    # 三个顶级包：scenepilot (流水线与 CLI)、scenegraph (场景模型与存储)、scenecontext (场景摘要与提示词)
    packages=find_packages(include=['scenepilot', 'scenepilot.*', 'scenegraph', 'scenegraph.*',
                                    'scenecontext', 'scenecontext.*']),
    include_package_data=True,
    package_data={
        'scenepilot': ['templates/*.j2'],
        'scenecontext': ['templates/*.j2'],
    },
    install_requires=[
        "click>=8.0",
        "pyyaml",
        "jinja2",
        "rich",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'scenepilot = scenepilot.cli:cli',
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
