# setup.py
from setuptools import setup, find_packages

setup(
    name="site_search",
    version="0.1.0",
    description="Поисковый движок SiteSearch: обход сайтов, индекс лемм и полнотекстовый поиск",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "nltk>=3.9",
        "pydantic>=2.5",
        "pymorphy3>=2.0",
        "PyYAML>=6.0",
        "SQLAlchemy>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": ["site_search=site_search.cli:cli"],
    },
    python_requires=">=3.11",
)
