"""Setup configuration for notice-aggregator package."""
from setuptools import setup, find_packages

setup(
    name="notice-aggregator",
    version="1.0.0",
    description="공모전·대외활동 수집기 - 위비티/캠퍼스픽/데이콘 공고를 RSS 피드로 통합",
    author="Your Name",
    python_requires=">=3.9",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "pydantic>=2.0",
        "aiohttp>=3.9.0",
        "apscheduler>=3.10.0,<4",
        "click>=8.1.0",
        "rich>=13.0.0",
        "beautifulsoup4>=4.12.0",
        "requests>=2.31.0",
        "urllib3>=2.0",
        "prometheus-client>=0.19.0",
        "python-dotenv>=1.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23.0",
            "pytest-cov>=4.1.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "notice-aggregator=notice_aggregator.main:main",
        ]
    },
)
