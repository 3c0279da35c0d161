#!/usr/bin/env python3

import contextlib
import io
import os
import tempfile
import unittest

import run

from albusfixtures import ws

class TestRun(unittest.TestCase):
    def setUp(self):
        fd, self.filename = tempfile.mkstemp(suffix='.ws')
        os.close(fd)

    def tearDown(self):
        os.remove(self.filename)

    def _main(self, src: str, *options: str):
        with open(self.filename, 'w', newline='') as f:
            f.write(src)
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            status = run.main(['run.py', *options, self.filename])
        return status, out.getvalue(), err.getvalue()

    def test_run(self):
        # 1 + 2 stored at key 0, then 3 printed
        src = ws('SSSTL SSSTSL TSSS SSSL SLT TTS SSSTTL TLST LLL')
        status, out, err = self._main(src)
        self.assertIsNone(status)
        self.assertEqual(out, '3\nstack: []\nheap: {0: 3}\ninsns: 9\n')
        self.assertEqual(err, '')

    def test_dis(self):
        status, out, _ = self._main(ws('SSTTL LLL'), '--dis')
        self.assertIsNone(status)
        self.assertEqual(out, '0000 PUSH -1\n0001 EXIT\n')

    def test_trace(self):
        status, _, err = self._main(ws('SSSTL LLL'), '--trace')
        self.assertIsNone(status)
        self.assertEqual(err, '0000 PUSH 1 stack=[]\n0001 EXIT stack=[1]\n')

    def test_runtime_error(self):
        status, _, err = self._main(ws('LSLSTL'))
        self.assertEqual(status, 1)
        self.assertEqual(err, f'{self.filename}:1:1: error: 0000 JMP 1: undefined label 1\n')

    def test_strict(self):
        status, _, err = self._main(ws('SSSTT'), '--strict')
        self.assertEqual(status, 1)
        self.assertIn('error: unterminated argument at end of input', err)
        status, out, _ = self._main(ws('SSSTT'))
        self.assertIsNone(status)
        self.assertEqual(out, 'stack: []\nheap: {}\ninsns: 0\n')

    def test_output_ending_in_newline(self):
        # push 10, print it as a character
        status, out, _ = self._main(ws('SSSTSTSL TLSS'))
        self.assertIsNone(status)
        self.assertEqual(out, '\nstack: []\nheap: {}\ninsns: 2\n')

    def test_huge_summary(self):
        # push 10, then square it fourteen times: 10 ** 16384
        text = 'SSSTSTSL' + 'SLS TSSL' * 14
        status, out, _ = self._main(ws(text))
        self.assertIsNone(status)
        self.assertEqual(out, f'stack: [{10 ** 16384}]\nheap: {{}}\ninsns: 29\n')

    def test_missing_file(self):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            self.assertEqual(run.main(['run.py']), 1)
            status = run.main(['run.py', self.filename + '.missing'])
        self.assertEqual(status, 1)
        self.assertIn('No such file or directory', err.getvalue())
