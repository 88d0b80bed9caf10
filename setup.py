#!/usr/bin/env python3
"""
viewmatch Setup Script
"""

from setuptools import setup, find_packages

setup(
    name='viewmatch',
    version='1.0.0',
    description='가속도계/지자기/자이로 기반 자세 추정 및 촬영 위치·방향 일치 판정',
    author='FurSys AI Team',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.20.0',
        'scipy>=1.7.0',
        'filterpy>=1.4.5',
        'pyyaml>=5.4.0',
        'pandas>=1.3.0',
    ],
    extras_require={
        'dev': [
            'pytest>=6.0.0',
            'pytest-cov>=2.0.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'viewmatch=viewmatch.main:main',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
)
