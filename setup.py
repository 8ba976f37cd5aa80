from setuptools import setup
about = {}
with open("photorename/__version__.py") as f:
    exec(f.read(), about)


setup(
    name="photorename",
    version=about["__version__"],
    description="Rename photos to their capture timestamp, moving .xmp sidecars along.",
    author="gabbro246",
    packages=["photorename"],
    install_requires=[
        "piexif",
        "Pillow",
        "colorama",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "renamebydate=photorename.renamebydate:main",
        ]
    },
    include_package_data=True,
    python_requires=">=3.10",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
