# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import os

import setuptools


base_dir = os.path.dirname(__file__)

about = {}
with open(os.path.join(base_dir, "formguard", "__about__.py")) as f:
    exec(f.read(), about)

with open(os.path.join(base_dir, "README.rst")) as f:
    long_description = f.read()


setuptools.setup(
    name=about["__title__"],
    version=about["__version__"],

    description=about["__summary__"],
    long_description=long_description,
    long_description_content_type="text/x-rst",
    license=about["__license__"],
    url=about["__uri__"],

    author=about["__author__"],
    author_email=about["__email__"],

    classifiers=[
        "Intended Audience :: Developers",

        "License :: OSI Approved :: Apache Software License",

        "Framework :: Pyramid",

        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],

    packages=[
        "formguard",
        "formguard.captcha",
        "formguard.cli",
        "formguard.ip_addresses",
        "formguard.metrics",
        "formguard.rate_limiting",
        "formguard.utils",
        "formguard.verification",
    ],

    python_requires=">=3.11",

    install_requires=[
        "click<8.2",
        "datadog",
        "itsdangerous>=2.0",
        "limits>=3.0",
        "pyramid>=2.0",
        "pyramid_services>=2.0",
        "redis",
        "requests",
        "structlog",
        "zope.interface",
    ],

    extras_require={
        "test": [
            "freezegun",
            "pretend",
            "pytest",
            "responses",
            "webob",
        ],
    },

    entry_points={
        "console_scripts": [
            "formguard = formguard.cli:formguard",
        ],
    },
)
