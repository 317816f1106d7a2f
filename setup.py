import setuptools

setuptools.setup(
    name="gbltool",
    version="1.0.0",
    author="The gbltool committers",
    description=("Gecko Bootloader (GBL) image parser and validator"),
    license="Apache Software License",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    python_requires='>=3.8',
    install_requires=[
        'cryptography>=2.6',
        'intelhex>=2.2.1',
        'click',
        'pyyaml',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        "console_scripts": ["gbltool=gbltool.main:gbltool"]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Development Status :: 4 - Beta",
        "Topic :: Software Development :: Build Tools",
        "License :: OSI Approved :: Apache Software License",
    ],
)
