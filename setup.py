from setuptools import setup, find_packages


install_requires = [
    'PyYAML>=3.0',
    'jsonschema>=4',
]

extras_require = {
    'cassandra': ['cassandra-driver>=3.25'],
    'memcached': ['pymemcache>=4'],
    'redis': ['redis>=4'],
    's3': ['boto3'],
}

extras_require['test'] = [
    'pytest',
    'moto[s3]>=5',
] + [req for name in ('cassandra', 'memcached', 'redis', 's3') for req in extras_require[name]]


def long_description():
    with open('README.md') as f:
        return f.read()


setup(
    name='TileStore',
    version="1.0.0",
    description='Metatile storage and tile request handling for distributed map rendering',
    long_description=long_description(),
    long_description_content_type='text/markdown',
    author='The TileStore Authors',
    license='Apache Software License 2.0',
    packages=find_packages(include=['tilestore', 'tilestore.*']),
    include_package_data=True,
    package_data={'': ['*.json']},
    install_requires=install_requires,
    extras_require=extras_require,
    python_requires='>=3.9',
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Database",
        "Topic :: Scientific/Engineering :: GIS",
    ],
    zip_safe=False
)
