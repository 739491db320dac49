from setuptools import setup, find_packages

setup(
    name="querysheet",
    version="0.1.0",
    packages=find_packages(exclude=['querysheet.tests', 'querysheet.tests.*']),
    include_package_data=True,
    python_requires='>=3.9',
    install_requires=[
        'Click>=8.0.0',
        'pandas>=2.0.0',
        'google-auth',
        'google-auth-oauthlib',
        'google-auth-httplib2',
        'google-api-python-client>=2.0.0',
        'pyyaml>=6.0.0',
        'rich>=13.9.0',
        'openpyxl>=3.1.0',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'querysheet=querysheet.src.cli.main:main',
        ],
    },
)
