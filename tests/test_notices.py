from thirdparty_notices.license_text import StaticLicenseTexts
from thirdparty_notices.types import DependencyRecord, LicenseRequirement, Notices


def test_add_license_keeps_first_seen_order():
    notices = Notices()
    mit = LicenseRequirement("MIT")
    apache = LicenseRequirement("Apache-2.0")

    notices.add_license(mit)
    notices.add_license(apache)
    notices.add_license(LicenseRequirement("MIT"))

    assert notices.licenses == [mit, apache]


def test_dependencies_are_not_deduplicated():
    notices = Notices()
    record = DependencyRecord(name="either", package_url="https://crates.io/crates/either/1.0.0", license_id="MIT")
    notices.add_dependency(record)
    notices.add_dependency(DependencyRecord(name="either", package_url="https://www.npmjs.com/package/either/v/1.0.0", license_id="MIT"))

    assert [dep.name for dep in notices.dependencies] == ["either", "either"]


def test_license_texts_reflect_final_requirement_set():
    provider = StaticLicenseTexts({"MIT": "MIT TEXT", "Apache-2.0": "APACHE TEXT"})
    notices = Notices()
    notices.add_license(LicenseRequirement("MIT"))
    assert notices.license_texts(provider) == [("MIT", "MIT TEXT")]

    notices.add_license(LicenseRequirement("Apache-2.0"))
    assert notices.license_texts(provider) == [("MIT", "MIT TEXT"), ("Apache-2.0", "APACHE TEXT")]


def test_or_later_requirement_is_rendered_separately():
    provider = StaticLicenseTexts({"MIT": "MIT TEXT"})
    notices = Notices()
    notices.add_license(LicenseRequirement("MIT"))
    notices.add_license(LicenseRequirement("MIT", or_later=True))

    assert [license_id for license_id, _ in notices.license_texts(provider)] == ["MIT", "MIT+"]
