from setuptools import find_namespace_packages, setup

setup(
    name="creator-script-pipeline",
    version="0.1.0",
    packages=find_namespace_packages(include=["shared*", "services*", "models*"]),
    py_modules=["app", "database"],
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "sqlalchemy",
        "alembic",
        "openai>=1.0",
        "aiohttp",
        "redis",
        "pyyaml",
        "python-dotenv",
        "python-jose",
        "python-multipart",
        "pypdf",
        "python-docx",
        "psutil",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    include_package_data=True,
    package_data={"": ["*.yaml"]},
    description="Asynchronous script generation pipeline for creator content",
)
