#!/usr/bin/env python

import os
import re
from setuptools import setup, find_packages

work_dir = os.path.dirname(os.path.realpath(__file__))
mod_dir = os.path.join(work_dir, 'src', 'kafkacat')


def get_version():
    with open(os.path.join(mod_dir, '__init__.py')) as f:
        return re.search(r"^__version__ = '([^']+)'", f.read(), re.M).group(1)


setup(
    name='kafkacat',
    version=get_version(),
    description='Generic non-JVM Apache Kafka producer and consumer command line tool',
    author='Confluent Inc',
    author_email='support@confluent.io',
    url='https://github.com/confluentinc/confluent-kafka-python',
    license='Apache License Version 2.0',
    python_requires='>=3.8',
    packages=find_packages('src'),
    package_dir={'': 'src'},
    install_requires=['confluent-kafka>=2.0.2'],
    extras_require={
        'tests': ['pytest'],
    },
    entry_points={
        'console_scripts': ['kafkacat = kafkacat.cli:main'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: Apache Software License',
        'Environment :: Console',
    ],
)
