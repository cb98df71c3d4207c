from setuptools import setup, find_packages

setup(
    name='webindex-api',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    install_requires=[
        'fastapi',
        'uvicorn',
        'pydantic>=2',
        'pydantic-settings',
        'python-dotenv',
        'httpx',
        'beautifulsoup4',
        'lxml',
        'readability-lxml',
        'numpy',
        'faiss-cpu>=1.7.4',
        'openai>=1.0',
        'sentence-transformers',
    ],
    extras_require={
        'test': ['pytest', 'pytest-asyncio'],
    },
    description='A FastAPI service that indexes web pages into a multi-user embedding store and serves similarity search.',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.9',
)
