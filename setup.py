from setuptools import setup, find_namespace_packages

# Read requirements.txt
with open('requirements.txt') as f:
    requirements = [
        line.strip()
        for line in f
        if line.strip() and not line.startswith('#')
    ]

setup(
    name="leaderboard_streaming",
    version="0.1.0",
    packages=find_namespace_packages(where="src", include=["leaderboard_streaming*"]),
    package_dir={"": "src"},
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "pytest-mock",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "gt-leaderboard=leaderboard_streaming.main:main",
        ],
    },
    python_requires=">=3.9",
)
