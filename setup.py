from os import path

from setuptools import setup

this_dir = path.abspath(path.dirname(__file__))
with open(path.join(this_dir, "README.md")) as f:
    long_description = f.read()

setup(
    name="VisitorHub",
    description="VisitorHub - multi-tenant visitor management backend",
    long_description=long_description,
    long_description_content_type="text/markdown",
    version="0.1.0",
    license="MIT",
    packages=[
        "visitorhub",
        "visitorhub.core",
        "visitorhub.domain",
        "visitorhub.handlers",
        "visitorhub.i18n",
        "visitorhub.routes",
        "visitorhub.services",
        "visitorhub.test",
    ],
    keywords=["visitor", "multi-tenant", "sqlalchemy", "fastapi"],
    python_requires=">=3.9",
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy>=2.0",
        "pydantic>=2.0",
        "colorama",
        "tenacity",
        "redis",
        "httpx",
        "bcrypt",
        "python-jose",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
    ],
    entry_points={
        "console_scripts": [
            "visitorhub = visitorhub.command:console_main",
        ]
    },
)
