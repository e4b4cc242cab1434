from setuptools import setup, find_packages

setup(
    name='cp-bundler',
    version='0.1.0',
    py_modules=['cpb', 'builder'],
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.10',
    install_requires=[
        'pydantic>=2',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'cpb = cpb:main',
        ],
    },
)
