from setuptools import setup, find_packages

setup(
    name="smartwin_payments",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={"smartwin": ["templates/emails/*.html"]},
    python_requires=">=3.10",
    install_requires=[
        'flask',
        'python-dotenv',
        'werkzeug',
        'email-validator',
        'requests',
        'resend',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
)
