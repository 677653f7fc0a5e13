"""Setup script for the AI agent calling demo."""

from setuptools import setup, find_packages

setup(
    name="agent-calling",
    version="1.0.0",
    description="Browser voice calls with a hosted AI agent",
    author="Your Name",
    packages=find_packages(include=["agent_calling", "agent_calling.*"]),
    package_data={"agent_calling.server": ["static/*.html"]},
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "python-dotenv>=1.0.0",
        "openai>=1.0.0",
        "elevenlabs>=2.0.0",
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "pydantic>=2.0.0",
        "httpx>=0.27.0",
        "pygame>=2.5.0",
        "pyttsx3>=2.90",
        "structlog>=23.0.0",
        "click>=8.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "agent-calling=agent_calling.cli.main:cli",
        ],
    },
)
