from setuptools import find_namespace_packages, setup

setup(
    name='keyedmap',
    version='0.1',
    packages=find_namespace_packages(where='src', include=['keyedmap*']),
    package_dir={'': 'src'},
    license='MIT License',
    description='Ordered and weak keyed maps with reentrancy-safe get-or-insert accessors',
    python_requires='>=3.9',
    install_requires=[
        'attrs>=22.2.0',
        'typing_extensions>=4.7.0',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
)
