import io

import setuptools

name = 'chaosnemesis'
desc = 'Fault scheduling and composition for testing distributed databases.'

author = "chaosnemesis developers"

packages = [
    'chaosnemesis',
    'chaosnemesis.actions',
    'chaosnemesis.common',
    'chaosnemesis.execute',
    'chaosnemesis.probes',
]

test_require = []
with io.open('requirements-dev.txt') as f:
    test_require = [l.strip() for l in f if l.strip() and not l.startswith('#')]

install_require = []
with io.open('requirements.txt') as f:
    install_require = [l.strip() for l in f if l.strip() and not l.startswith('#')]

setup_params = dict(
    name=name,
    version='0.1.0',
    description=desc,
    author=author,
    packages=packages,
    install_requires=install_require,
    extras_require={'test': test_require},
    python_requires='>=3.6'
)


def main():
    """Package installation entry point."""
    setuptools.setup(**setup_params)


if __name__ == '__main__':
    main()
