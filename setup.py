# setup.py
from setuptools import setup, find_packages

# Version is defined here to avoid import issues during build
__version__ = "1.0.0"

setup(
    name='contentsync',
    version=__version__,
    description='Content synchronization engine - fetch documents and media from remote sources with rollback.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    install_requires=[
        'click>=8.1.0',
        'rich>=13.0.0',
        'PyYAML>=6.0',
        'pydantic>=2.0',
        'httpx>=0.25.0',
        'Pillow>=10.0.0',
        'markdown-it-py>=3.0.0',
        'jsonpath-ng>=1.6.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'respx>=0.20.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'contentsync = contentsync.cli:cli',
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Operating System :: OS Independent",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Utilities",
    ],
    python_requires='>=3.10',
    keywords='content, sync, cms, download, media, cache',
)
