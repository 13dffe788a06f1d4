from setuptools import setup, find_packages

setup(
    name='addon-manifest',
    version='0.1.0',
    description='Generate the OMSI 2 addon installer manifest from GitHub releases',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'PyYAML',
        'urllib3',
        'platformdirs',
        'rich',
        'pyuca',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'addon-manifest=addon_manifest.cli:main',
        ],
    },
)
