"""Setup script for the portfolio admin backend and Python client"""
from setuptools import find_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="portfolio-admin",
    version="0.1.0",
    description="Admin authentication, session lifecycle and audit logging for a portfolio site, with a Python client",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={
        "portfolio_admin": "backend/portfolio_admin",
        "portfolio_admin_client": "sdk/portfolio_admin_client",
    },
    packages=(
        find_packages(where="backend", include=["portfolio_admin", "portfolio_admin.*"])
        + find_packages(where="sdk", include=["portfolio_admin_client", "portfolio_admin_client.*"])
    ),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Framework :: FastAPI",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn[standard]>=0.27.0",
        "sqlalchemy>=2.0.0",
        "alembic>=1.13.0",
        "psycopg2-binary>=2.9.9",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "slowapi>=0.1.9",
        "prometheus-client>=0.19.0",
        "prometheus-fastapi-instrumentator>=6.1.0",
        "requests>=2.31.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.26.0",
        ],
    },
)
