from setuptools import setup
from setuptools import find_packages

config = {
    'name' : 'IVM',
    'description' : 'Internal Variable Multibody dynamics: recursive articulated body algorithms',
    'install_requires' : [
        'numpy',
        'scipy',
        'prettytable'
    ],
    'extras_require' : {
        'test' : ['pytest']
    },
    'python_requires' : '>=3.8',
    'packages' : find_packages('src'),
    'package_dir' : {'' : 'src'},
}

setup(**config)
