#!/usr/bin/env python
#    figgistest/accesstest.py - test cases for the Figgis accessor cache
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
import threading, unittest

from figgis import NoSetterError
from figgis import access
from figgis.access import AccessorCache, CompiledAccess, ReflectiveAccess, NO_VALUE
from figgis.XML import dumps, loads
from figgistest import UserOptions, UserOptionsAdd, ProgressStatus

__version__ = "0.1"
__author__ = "Shawn Sulma <genosha@470th.org>"

class Plain ( object ) :
    kind = "class default"
    def __init__ ( self ) :
        self.value = 1
        self._private = 2
    @property
    def double ( self ) :
        return self.value * 2
    @property
    def settable ( self ) :
        return self.value
    @settable.setter
    def settable ( self, value ) :
        self.value = value
    def bump ( self, by ) -> None :
        self.value += by
    def plus ( self, by ) :
        return self.value + by

class Slotted ( object ) :
    __slots__ = [ "present", "notpresent" ]

def module_function ( a, b ) :
    return a * b

class AccessTests ( unittest.TestCase ) :
    def setUp ( self ) :
        self.cache = AccessorCache( self.strategy() )

    def strategy ( self ) :
        return CompiledAccess()

    def testGetter ( self ) :
        plain = Plain()
        self.assertEqual( self.cache.getter( Plain, 'value' )( plain ), 1 )
        self.assertEqual( self.cache.getter( Plain, '_private' )( plain ), 2 )
        self.assertEqual( self.cache.getter( Plain, 'double' )( plain ), 2 )

    def testSetter ( self ) :
        plain = Plain()
        self.cache.setter( Plain, 'value' )( plain, 5 )
        self.cache.setter( Plain, 'settable' )( plain, 7 )
        self.cache.setter( Plain, 'kind' )( plain, "instance" )
        self.assertEqual( plain.value, 7 )
        self.assertEqual( plain.kind, "instance" )
        self.assertEqual( Plain.kind, "class default" )

    def testNoSetter ( self ) :
        with self.assertRaises( NoSetterError ) :
            self.cache.setter( Plain, 'double' )

    def testSlots ( self ) :
        slotted = Slotted()
        self.cache.setter( Slotted, 'present' )( slotted, "yes it is" )
        self.assertEqual( self.cache.getter( Slotted, 'present' )( slotted ), "yes it is" )
        with self.assertRaises( NoSetterError ) :
            self.cache.setter( Slotted, 'absent' )

    def testMissingAttribute ( self ) :
        with self.assertRaises( AttributeError ) :
            self.cache.getter( Plain, 'absent' )( Plain() )

    def testInvoker ( self ) :
        plain = Plain()
        self.assertIs( self.cache.invoker( Plain.bump )( plain, ( 3, ) ), NO_VALUE )
        self.assertEqual( plain.value, 4 )
        self.assertEqual( self.cache.invoker( Plain.plus )( plain, ( 1, ) ), 5 )

    def testStaticInvoker ( self ) :
        self.assertEqual( self.cache.invoker( module_function )( None, ( 6, 7 ) ), 42 )

    def testNoValue ( self ) :
        self.assertFalse( NO_VALUE )
        self.assertIsNot( NO_VALUE, None )

class CompiledAccessTests ( AccessTests ) :
    def testCached ( self ) :
        """One closure per key, returned on every later request"""
        getter = self.cache.getter( Plain, 'value' )
        self.assertIs( self.cache.getter( Plain, 'value' ), getter )
        self.assertIs( self.cache.setter( Plain, 'value' ), self.cache.setter( Plain, 'value' ) )
        self.assertIs( self.cache.invoker( Plain.plus ), self.cache.invoker( Plain.plus ) )
        self.assertEqual( list( self.cache.getters ), [ ( Plain, 'value' ) ] )

    def testPerType ( self ) :
        self.assertIsNot( self.cache.getter( Plain, 'value' ), self.cache.getter( Plain, 'double' ) )
        self.assertEqual( len( self.cache.getters ), 2 )

    def testConcurrentFirstUse ( self ) :
        results = []
        barrier = threading.Barrier( 8 )
        def resolve () :
            barrier.wait()
            results.append( self.cache.getter( Plain, 'settable' ) )
        threads = [ threading.Thread( target = resolve ) for i in range( 8 ) ]
        for thread in threads :
            thread.start()
        for thread in threads :
            thread.join()
        self.assertEqual( len( results ), 8 )
        self.assertEqual( len( set( id( getter ) for getter in results ) ), 1 )
        self.assertEqual( len( self.cache.getters ), 1 )

class ReflectiveAccessTests ( AccessTests ) :
    def strategy ( self ) :
        return ReflectiveAccess()

    def testNotCached ( self ) :
        self.cache.getter( Plain, 'value' )
        self.cache.setter( Plain, 'value' )
        self.cache.invoker( Plain.plus )
        self.assertEqual( ( self.cache.getters, self.cache.setters, self.cache.invokers ), ( {}, {}, {} ) )

class DebugSwitchTests ( unittest.TestCase ) :
    def tearDown ( self ) :
        access.set_debug( False )

    def testSwitch ( self ) :
        self.assertFalse( access.debug_enabled() )
        access.set_debug( True )
        self.assertTrue( access.debug_enabled() )
        self.assertIsInstance( access.default().strategy, ReflectiveAccess )
        access.set_debug( False )
        self.assertIsInstance( access.default().strategy, CompiledAccess )

    def testRoundTripInDebugMode ( self ) :
        access.set_debug( True )
        data = UserOptions( True, 3, [ 1, 2 ], [], UserOptionsAdd( 9, "debug", ProgressStatus.InProgress ) )
        self.assertEqual( repr( loads( dumps( data ), UserOptions ) ), repr( data ) )

if __name__ == "__main__":
    unittest.main()
