from os import path

import setuptools

path_to_repo = path.abspath(path.dirname(__file__))
with open(path.join(path_to_repo, 'readme.md'), encoding='utf-8') as f:
    long_description = f.read()

required_pypi = [
    'joblib',  # parallel evaluation of candidate splits
    'numpy',
    'pandas',
    'scipy',
    'scikit-learn',
]

setuptools.setup(
    name="priorgain",
    version="0.1.0",
    author="priorgain developers",
    description="Information gain split criterion for decision trees, optionally weighted by class priors",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(
        exclude=['tests', 'tests.*', '*.test.*']
    ),
    install_requires=required_pypi,
    extras_require={
        'dev': [
            'pytest',
            'pytest-cov',
        ]
    },
    python_requires='>=3.9.0',
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
