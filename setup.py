from setuptools import setup, find_packages
import re

# Read version from takehome/__init__.py
with open('takehome/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='take-home',
    version=version,
    packages=find_packages(include=['takehome', 'takehome.*']),
    package_data={
        'takehome.sdk.rules': ['data/*/*.json'],
    },
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'take-home=takehome.cli.__main__:main',
        ],
    },
    author='Personal',
    description='After-tax income calculations and scenario comparison.',
    python_requires='>=3.10',
)
