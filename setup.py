from setuptools import setup, find_packages

setup(
    name='mercury-luau',
    version='0.1.0',
    py_modules=['mercury', 'pipeline'],
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'lark',
        'pydantic',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'mercury = mercury:main',
        ],
    },
)
