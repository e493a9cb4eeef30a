from setuptools import setup

setup(
    name='jhsiao-rwbuild',
    version='0.0.1',
    author='Jason Hsiao',
    author_email='oaishnosaj@gmail.com',
    description='Build paired readers/writers by chaining stream transforms',
    packages=['jhsiao', 'jhsiao.rwbuild'],
    python_requires='>=3.6',
    install_requires=['cryptography', 'pycryptodome'],
    extras_require={'test': ['pytest', 'numpy']},
)
