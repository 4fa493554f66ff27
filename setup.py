"""Install the user accounts package."""

from setuptools import setup, find_packages

setup(
    name='useraccounts',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    entry_points={
        'console_scripts': ['useraccounts=useraccounts.cli:cli'],
    },
    install_requires=[
        "flask>=2.3",
        "flask-sqlalchemy>=3.0",
        "sqlalchemy>=1.4",
        "pyjwt>=2.0",
        "wtforms>=3.0",
        "email-validator",
        "celery[redis]",
        "retry",
        "pytz",
        "click",
        "python-json-logger>=2.0",
    ],
    extras_require={
        'test': ["pytest"],
    },
    zip_safe=False
)
