"""Install the Product Opener SSO bridge."""

from setuptools import setup, find_packages

setup(
    name='productopener-auth',
    version='0.1.0',
    packages=find_packages(exclude=['*tests*']),
    install_requires=[
        "flask",
        "flask-sqlalchemy",
        "sqlalchemy",
        "requests",
        "redis",
        "pyjwt",
        "pytz",
        "python-dateutil",
        "python-json-logger"
    ],
    extras_require={
        "test": [
            "pytest",
            "mimesis"
        ]
    },
    zip_safe=False
)
