from setuptools import find_packages, setup

setup(
    name="leadforge-backend",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["app", "database"],
    install_requires=[
        "fastapi<0.137",
        "uvicorn",
        "sqlalchemy[asyncio]>=2.0",
        "aiosqlite",
        "asyncpg",
        "pydantic>=2",
        "python-dotenv",
        "pyyaml",
        "openai>=1.40",
        "aiohttp",
        "python-jose[cryptography]",
        "bcrypt",
        "python-multipart",
        "openpyxl",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    include_package_data=True,
    package_data={"services.settings": ["seed_settings.yaml"]},
    description="Backend package for LeadForge (batch lead enrichment and outreach drafting)",
    author="Andreas Malathouras",
    author_email="steelstridertgm@gmail.com",
)
