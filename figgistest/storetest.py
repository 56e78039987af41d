#!/usr/bin/env python
#    figgistest/storetest.py - test cases for Figgis XML files on disk
#    Copyright (C) 2009 Shawn Sulma <genosha@470th.org>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, either version 3 of the License, or
#    (at your option) any later version.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <http://www.gnu.org/licenses/>.
import codecs, itertools, os, shutil, tempfile, unittest
from unittest import mock

from figgis import NotFound, StabilityFailure, SaveError, ParseError, ElementNameMismatch
from figgis import store
from figgis.store import save, load, XMLFileStore, WRITE_SUFFIX, READ_SUFFIX
import figgistest
from figgistest import User, UserOptions, UserOptionsAdd, DataType, ProgressStatus

__version__ = "0.1"
__author__ = "Shawn Sulma <genosha@470th.org>"

class FiggisStoreTests ( figgistest.FiggisTests ) :
    r"""Every round trip of the common suite, through a file."""
    def setUp ( self ) :
        self.directory = tempfile.mkdtemp()
        self.marshal = self._save
        self.unmarshal = self._load

    def tearDown ( self ) :
        shutil.rmtree( self.directory )

    def _save ( self, value ) :
        path = os.path.join( self.directory, "value.xml" )
        ok, error = save( value, path )
        assert ok, error
        return path

    def _load ( self, path, kind ) :
        value, ok, error = load( path, kind )
        assert ok, error
        return value

class StoreTestCase ( unittest.TestCase ) :
    def setUp ( self ) :
        self.directory = tempfile.mkdtemp()
        self.path = os.path.join( self.directory, "options.xml" )

    def tearDown ( self ) :
        shutil.rmtree( self.directory )

    def _bytes ( self ) :
        with open( self.path, 'rb' ) as f :
            return f.read()

    def _leftovers ( self ) :
        return sorted( name for name in os.listdir( self.directory ) if name.endswith( '.tmp' ) )

class SaveTests ( StoreTestCase ) :
    def testFileFormat ( self ) :
        """UTF-8 with a byte-order mark, a declaration and two-space indentation"""
        ok, error = save( UserOptions( friends = [ 1 ] ), self.path )
        self.assertTrue( ok )
        self.assertIsNone( error )
        content = self._bytes()
        self.assertTrue( content.startswith( codecs.BOM_UTF8 ) )
        lines = content[len( codecs.BOM_UTF8 ):].decode( 'utf-8' ).splitlines()
        self.assertEqual( lines[:4], [ '<?xml version="1.0" encoding="utf-8"?>', '<Options>', '  <Options>'
            , '    <OperatorCall>False</OperatorCall>' ] )
        self.assertIn( '      <int>1</int>', lines )
        self.assertEqual( lines[-1], '</Options>' )

    def testNonAscii ( self ) :
        data = UserOptions( add = UserOptionsAdd( 1, "café 日本", ProgressStatus.Completed ) )
        save( data, self.path )
        self.assertIn( "café 日本".encode( 'utf-8' ), self._bytes() )
        self.assertEqual( repr( load( self.path, UserOptions )[0] ), repr( data ) )

    def testIdempotent ( self ) :
        data = User( 11, DataType.TypeD )
        save( data, self.path )
        first = self._bytes()
        save( load( self.path, User )[0], self.path )
        self.assertEqual( self._bytes(), first )

    def testOverwrite ( self ) :
        save( UserOptions( status = 1 ), self.path )
        save( UserOptions( status = 2 ), self.path )
        self.assertEqual( load( self.path, UserOptions )[0]._status, 2 )
        self.assertEqual( self._leftovers(), [] )

    def testFailedSaveKeepsFile ( self ) :
        """A value that cannot be rendered leaves the previous file untouched"""
        save( UserOptions( status = 3 ), self.path )
        before = self._bytes()
        ok, error = XMLFileStore( UserOptions, strict = True ).save( object(), self.path )
        self.assertFalse( ok )
        self.assertIsInstance( error, SaveError )
        self.assertEqual( self._bytes(), before )
        self.assertEqual( self._leftovers(), [] )

    def testMissingDirectory ( self ) :
        ok, error = save( UserOptions(), os.path.join( self.directory, "absent", "options.xml" ) )
        self.assertFalse( ok )
        self.assertIsInstance( error, SaveError )
        self.assertIsInstance( error.__cause__, OSError )

    def testReplaceFallback ( self ) :
        """When replacing fails, the target is removed and the file renamed into place"""
        save( UserOptions( status = 1 ), self.path )
        with mock.patch( 'figgis.store.os.replace', side_effect = PermissionError( "busy" ) ) :
            ok, error = save( UserOptions( status = 5 ), self.path )
        self.assertTrue( ok, error )
        self.assertEqual( load( self.path, UserOptions )[0]._status, 5 )
        self.assertEqual( self._leftovers(), [] )

class LoadTests ( StoreTestCase ) :
    def testNotFound ( self ) :
        value, ok, error = load( self.path, UserOptions )
        self.assertIsNone( value )
        self.assertFalse( ok )
        self.assertIsInstance( error, NotFound )

    def testNoTemporaryFiles ( self ) :
        save( UserOptions(), self.path )
        value, ok, error = load( self.path, UserOptions )
        self.assertTrue( ok )
        self.assertEqual( self._leftovers(), [] )
        self.assertFalse( os.path.exists( self.path + WRITE_SUFFIX ) )
        self.assertFalse( os.path.exists( self.path + READ_SUFFIX ) )

    def testMalformed ( self ) :
        """Unparseable content fails at once, without retrying"""
        with open( self.path, 'w' ) as f :
            f.write( "<Options><Options>" )
        with mock.patch( 'figgis.store.time.sleep' ) as sleep :
            value, ok, error = load( self.path, UserOptions )
        self.assertFalse( ok )
        self.assertIsInstance( error, ParseError )
        self.assertEqual( sleep.call_count, 0 )
        self.assertEqual( self._leftovers(), [] )

    def testWrongType ( self ) :
        save( User(), self.path )
        value, ok, error = load( self.path, UserOptions )
        self.assertIsNone( value )
        self.assertIsInstance( error, ElementNameMismatch )

    def testUnstable ( self ) :
        """A file that changes on every read gives up after the configured attempts"""
        save( UserOptions(), self.path )
        with mock.patch.object( store, '_mtime', side_effect = itertools.count() ) as mtime :
            with mock.patch( 'figgis.store.time.sleep' ) as sleep :
                value, ok, error = load( self.path, UserOptions )
        self.assertIsNone( value )
        self.assertFalse( ok )
        self.assertIsInstance( error, StabilityFailure )
        self.assertEqual( mtime.call_count, 6 )
        self.assertEqual( sleep.call_count, 2 )
        self.assertEqual( self._leftovers(), [] )

    def testRetrySucceeds ( self ) :
        save( UserOptions( status = 8 ), self.path )
        with mock.patch.object( store, '_mtime', side_effect = [ 1, 2, 3, 3 ] ) :
            with mock.patch( 'figgis.store.time.sleep' ) as sleep :
                value, ok, error = load( self.path, UserOptions )
        self.assertTrue( ok )
        self.assertIsNone( error )
        self.assertEqual( value._status, 8 )
        sleep.assert_called_once_with( store.DELAY )

    def testAttempts ( self ) :
        save( UserOptions(), self.path )
        with mock.patch.object( store, '_mtime', side_effect = itertools.count() ) as mtime :
            with mock.patch( 'figgis.store.time.sleep' ) :
                value, ok, error = XMLFileStore( UserOptions, attempts = 5, delay = 0 ).load( self.path )
        self.assertIsInstance( error, StabilityFailure )
        self.assertEqual( mtime.call_count, 10 )

if __name__ == "__main__":
    unittest.main()
