import io
from setuptools import setup, find_packages

install_requires = open("requirements.txt").readlines()
dev_requires = open("requirements-dev.txt").readlines()

setup(
    name="posthog-bridge",
    version="0.1.0",
    description="Identity-aware PostHog client exposed to host applications through named commands",
    long_description=io.open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    keywords="posthog analytics events identify alias",
    license="MIT",
    packages=find_packages(include=["posthog_bridge", "posthog_bridge.*"]),
    install_requires=install_requires,
    extras_require={
        "dev": dev_requires,
    },
    python_requires=">=3.10",
    include_package_data=True,
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    entry_points={
        "console_scripts": ["posthog-bridge=posthog_bridge.__main__:app"],
    },
)
