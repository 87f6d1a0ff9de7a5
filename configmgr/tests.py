from django.core.exceptions import ValidationError
from django.test import TestCase

from configmgr.models import SystemSetting


class SystemSettingTests(TestCase):
    def test_business_hours_must_be_times(self):
        setting = SystemSetting(key="business_open", value="nine")
        with self.assertRaises(ValidationError):
            setting.clean()

    def test_clean_normalizes(self):
        setting = SystemSetting(key=" business_close ", value=" 18:00 ")
        setting.clean()
        self.assertEqual((setting.key, setting.value), ("BUSINESS_CLOSE", "18:00"))

    def test_other_keys_are_free_text(self):
        SystemSetting(key="SPA_NAME", value="Dermal Skin Clinic").clean()
