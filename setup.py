from setuptools import find_packages, setup

setup(
    name='shell-cronrunner',
    version='1.0.0',
    description='Timer-driven recurring job scheduler with a crash-safe run store',
    packages=find_packages(exclude=[
        'cronrunner.test',
        'cronrunner.test.*',
    ]),
    python_requires='>=3.8',
    install_requires=[
        'chardet',
        'python-dateutil',
        'requests',
        'simplejson',
    ],
    extras_require={
        'test': [
            'mock',
            'pytest',
        ],
    },
    entry_points={
        "console_scripts": [
            "cronrun = cronrunner.main:main",
        ],
    }
)
